"""Workbook reader adapter (pandas / openpyxl)."""
