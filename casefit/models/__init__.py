from casefit.models.payload_item import PayloadItem
from casefit.models.container_item import ContainerItem, ProtectionLevel
from casefit.models.match import Match, PriceCategory
from casefit.models.feedback import Feedback

__all__ = [
    "PayloadItem",
    "ContainerItem",
    "ProtectionLevel",
    "Match",
    "PriceCategory",
    "Feedback",
]
