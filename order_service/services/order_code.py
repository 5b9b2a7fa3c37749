"""
Human-readable order codes
"""
import random
import time


def generate_order_code(prefix: str = "MM") -> str:
    """``prefix`` + current time in milliseconds + random number in [0, 1000)"""
    return f"{prefix}{int(time.time() * 1000)}{random.randrange(1000)}"
