"""
dbdocdiff: per-sheet semantic diff of database definition workbooks, using an LLM.
"""

__version__ = "0.1.0"
