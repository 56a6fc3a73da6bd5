"""SQLAlchemy models package."""

from .application import (  # noqa: F401
    Application,
    ApplicationStatusEnum,
    DeliveryConfirmedByEnum,
    Shipping,
    ShippingStatusEnum,
)
from .campaign import (  # noqa: F401
    Campaign,
    CampaignRewardTypeEnum,
    CampaignStatusEnum,
    CampaignTypeEnum,
)
from .chat import ChatRoom, ChatRoomStatusEnum  # noqa: F401
from .creator import Creator, CreatorTierEnum  # noqa: F401
from .job_lease import JobLease  # noqa: F401
from .notification import (  # noqa: F401
    Notification,
    NotificationChannelEnum,
    NotificationStatusEnum,
)
from .reputation import (  # noqa: F401
    PenaltyEvent,
    PenaltyReasonEnum,
    ScoreEvent,
    ScoreReasonEnum,
)
