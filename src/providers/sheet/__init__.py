"""Tabular store providers (the worksheets behind the service).

SQLiteSheetProvider keeps submissions, playbook responses and the two
editor-maintained standings sheets in data/sheets.db.
"""
