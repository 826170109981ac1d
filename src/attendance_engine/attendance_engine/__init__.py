"""Attendance Engine package.

Time-and-pay core organised by feature modules (timing, attendance, overtime,
review, payroll, ...) with a thin Flask controller layer on top of
service/repository layers.
"""
