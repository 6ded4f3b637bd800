"""Mapper configuration.

RoostConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RoostConfig:
    """Mapper configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RoostConfig(debug=True, compression=False)
    """

    # Expose the NotFound detail (known dispatch keys) in the response body
    debug: bool = False

    # Enumerate known dispatch keys in NotFound details
    diagnostics: bool = True

    # Response compression (gzip preferred over deflate)
    compression: bool = True
    compress_min_length: int = 100  # Text results shorter than this are never compressed

    # API description served at the reserved ``openapi.json`` route
    api_description: bool = True
    api_title: str = "roost"
    api_version: str = "0.1.0"
