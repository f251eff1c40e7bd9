"""Scalar aliases shared by the connector and task models."""
from typing import Annotated, Dict

from pydantic import StringConstraints

ConnectorName = Annotated[str, StringConstraints(min_length=1)]

# Arbitrary connector-specific settings; values are always strings on the wire.
ConnectorConfig = Dict[str, str]
