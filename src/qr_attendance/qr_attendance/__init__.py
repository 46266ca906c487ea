"""QR Attendance package.

Organized by feature modules (tokens, attendance, leave, ...) with a thin
Flask controller layer on top of service/repository layers.
"""
