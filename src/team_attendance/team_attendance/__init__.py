"""Team attendance package.

Organized by feature modules (users, events, attendance, points, staff requests,
penalties) with a thin Flask controller layer over service/repository layers.
"""
