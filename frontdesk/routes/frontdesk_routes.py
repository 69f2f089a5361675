"""Route registration entrypoint for the front desk service."""

from frontdesk.routes.admin_routes import register_admin_routes
from frontdesk.routes.system_routes import register_system_routes
from frontdesk.routes.visit_routes import register_visit_routes


def register_routes(app, state):
    """Register all HTTP routes against the shared AppState."""
    register_visit_routes(app, state)
    register_admin_routes(app, state)
    register_system_routes(app, state)
