"""Service wiring.

Services are built once at startup by ``init_services`` and kept on
``app.state``; route handlers receive them through the ``get_*`` providers.
"""

from fastapi import FastAPI, Request

from onboard.config import settings
from onboard.realtime import RealtimeChannel
from onboard.services.activity_logger import ActivityLogger
from onboard.services.application_service import ApplicationService
from onboard.services.discovery_service import DiscoveryService
from onboard.services.notification_service import NotificationDispatcher
from onboard.services.session_service import SessionService
from onboard.services.wishlist_service import WishlistService


def init_services(app: FastAPI, db, channel: RealtimeChannel):
    activity = ActivityLogger(db)
    dispatcher = NotificationDispatcher(
        db, channel, settings.REMINDER_WINDOW_MINUTES, settings.BROADCAST_BATCH_SIZE
    )

    app.state.db = db
    app.state.channel = channel
    app.state.activity = activity
    app.state.dispatcher = dispatcher
    app.state.applications = ApplicationService(db, dispatcher, activity)
    app.state.sessions = SessionService(db, activity)
    app.state.discovery = DiscoveryService(db, settings.DISCOVER_PAGE_SIZE)
    app.state.wishlist = WishlistService(db)


def get_activity_logger(request: Request) -> ActivityLogger:
    return request.app.state.activity


def get_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.dispatcher


def get_application_service(request: Request) -> ApplicationService:
    return request.app.state.applications


def get_session_service(request: Request) -> SessionService:
    return request.app.state.sessions


def get_discovery_service(request: Request) -> DiscoveryService:
    return request.app.state.discovery


def get_wishlist_service(request: Request) -> WishlistService:
    return request.app.state.wishlist
