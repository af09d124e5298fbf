"""Workforce & attendance sync engine.

This package is organized by feature modules (snapshot, replica, workers, sync,
attendance, sync_errors, audit) with a thin Flask controller layer over
service/repository layers.
"""
