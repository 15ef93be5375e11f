"""
HTTP surface — FastAPI over the quote, materialize and campaign engines.

    from inkquote.http import Services, create_app

    app = create_app()   # SQLAlchemy stores at INKQUOTE_DATABASE_URL
    app = create_app(Services(rates=rates, orders=orders, campaigns=campaigns))

Serve with any ASGI server: uvicorn "inkquote.http:create_app" --factory
"""

from inkquote.http._app import Services, get_services, router, create_app

__all__ = ("Services", "get_services", "router", "create_app")
