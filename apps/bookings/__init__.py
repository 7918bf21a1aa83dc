"""Bookings app package.

This app encapsulates the booking domain: the booking model, the
lifecycle state machine (arrival, owner confirmation, completion with
overstay billing), lot availability checks and the periodic status
sweep. Creation and extension lock the parking lot row inside a
database transaction so a lot is never booked beyond its capacity.
"""
