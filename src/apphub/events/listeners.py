from __future__ import annotations

import logging
from typing import List, Optional

from apphub.events.domain_events import InvitationCreatedEvent
from apphub.events.event_bus import EventBus, Subscription
from apphub.invitations.mailer import InvitationMailer, MailClient
from apphub.system.site_context import SiteContext

logger = logging.getLogger(__name__)


def register_listeners(
    bus: EventBus,
    *,
    site_context: Optional[SiteContext] = None,
    mail_client: Optional[MailClient] = None,
) -> List[Subscription]:
    """Wire the in-process listeners; returns their subscriptions."""
    site_name = None
    if site_context is not None:
        site_name = lambda: site_context.settings.display_name  # noqa: E731

    mailer = InvitationMailer(client=mail_client, site_name=site_name)
    subscriptions = [bus.subscribe(InvitationCreatedEvent, mailer)]
    logger.info("Registered %d event listener(s)", len(subscriptions))
    return subscriptions
