"""Attendance Gate package.

This package is organized by feature modules (geofence, biometrics, attendance,
reports, ...) with a thin Flask controller layer over service/repository layers.
"""
