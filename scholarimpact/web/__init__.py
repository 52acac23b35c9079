from .app import create_app, build_gateway
