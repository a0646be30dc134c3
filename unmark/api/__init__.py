"""
Unmark API

Status endpoints; no image data is accepted here.
"""
