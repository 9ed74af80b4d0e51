"""Event Booking Domain Events"""
