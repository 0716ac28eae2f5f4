from downtime.api.routes import dashboard, imports

__all__ = ["dashboard", "imports"]
