from .health import health_bp
from .clusters import clusters_bp
from .admin import admin_bp

__all__ = ['health_bp', 'clusters_bp', 'admin_bp']
