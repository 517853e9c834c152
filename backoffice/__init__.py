"""
Talent Back Office
Profiles, job postings and announcements for a talent marketplace.

Architecture:
- MongoDB: attributes, user types, profiles (core fields + dynamic values), jobs, news
- Attribute/user type engine: validation and form descriptors derived at runtime
- Auth: bearer tokens verified here, issued by the platform's login service
"""

__version__ = "1.0.0"
