"""pmhome — project-management backend.

Authentication, user administration, and the client-side session helpers
that the dashboards use to talk to the API.
"""

__version__ = "0.1.0"
