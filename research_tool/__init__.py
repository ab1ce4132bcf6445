"""
Research tool backend: upload financial transcripts, extract their text and
turn them into a normalized JSON / CSV report with Gemini.
"""
