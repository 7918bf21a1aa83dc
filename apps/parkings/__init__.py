"""Parkings app package.

Owners list parking lots with a fixed spot capacity and an hourly
price; drivers search the available lots and check free spots for a
time window before booking.
"""
