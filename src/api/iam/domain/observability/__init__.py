"""Domain-Oriented Observability for IAM domain layer.

Probes for aggregate and domain service operations following
Domain-Oriented Observability patterns.
"""

from iam.domain.observability.aggregate_probe import (
    AggregateProbe,
    DefaultAggregateProbe,
)
from iam.domain.observability.domain_service_probe import (
    DefaultDomainServiceProbe,
    DomainServiceProbe,
)

__all__ = [
    "AggregateProbe",
    "DefaultAggregateProbe",
    "DefaultDomainServiceProbe",
    "DomainServiceProbe",
]
