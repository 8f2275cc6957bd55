"""
Auth Portal
Sign-up, sign-in, password reset and checkout sessions backed by Supabase and Creem
"""

__version__ = "1.0.0"
