"""Scheduler module for periodic notification tasks.

Schedule overview:
  - 08:00 daily     - Template notifications (birthdays, holidays, custom dates)
  - every 6 hours   - Coupon expiry reminders
"""
