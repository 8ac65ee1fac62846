"""
Scholaco Backend Application Package

This package contains the backend for the Scholaco scholarship application
tracker, including:

- services/application_service.py: Application CRUD scoped to the signed-in user
- derived_state.py: Status badges, deadline urgency, calendar and reminder views
- session.py: Sign-in/sign-out lifecycle and user actions
- brevo_service.py: Transactional email through Brevo
- main.py: FastAPI application exposing the dashboard view-model
"""

__version__ = "1.0.0"
