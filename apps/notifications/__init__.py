"""Notifications app package.

Stores in-app notifications for drivers and lot owners. Booking
services create them on key lifecycle transitions; recipients list,
read and delete them through the API.
"""
