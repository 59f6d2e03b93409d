"""Office Attendance package.

Organized by feature modules (users, rooms, schedules, requests, ...) with a
thin Flask controller layer over service/repository layers that persist to a
document store.
"""
