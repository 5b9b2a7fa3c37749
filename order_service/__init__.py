"""
Order Service
"""
