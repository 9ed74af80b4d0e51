"""Event Booking Domain Value Objects"""
