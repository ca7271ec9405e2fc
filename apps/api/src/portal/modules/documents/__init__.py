"""
Student document generation: digital record (expediente) and digital
card (carnet), rendered to PDF and published to object storage.
"""
