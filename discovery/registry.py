"""
discovery/registry.py - Registry of watched addresses.

Built once at startup from a flat key/value listing:

    ethaddr_<name>=<address>

Pipeline:
1. Keep keys starting with the address prefix (case-insensitive)
2. Strip the prefix: the remainder is the target name
3. Trim and validate the value as a chain address; skip invalid ones
4. Fail if nothing valid remains
"""

from typing import Iterator, Mapping, Tuple

from core.constants import DEFAULT_ADDRESS_PREFIX, ErrorCode
from core.exceptions import ConfigError
from core.logging import get_logger
from core.models import WatchTarget
from core.validators import normalize_address

logger = get_logger(__name__)


class AddressRegistry:
    """Immutable, ordered list of watch targets."""

    def __init__(self, targets: Tuple[WatchTarget, ...]):
        self._targets = tuple(targets)

    @classmethod
    def load(
        cls,
        source: Mapping[str, str],
        prefix: str = DEFAULT_ADDRESS_PREFIX,
    ) -> "AddressRegistry":
        """
        Load watch targets from a key/value listing.

        Args:
            source: Listing such as os.environ
            prefix: Key prefix marking a watch entry

        Returns:
            AddressRegistry in listing order

        Raises:
            ConfigError: If no valid target was found
        """
        prefix = prefix or DEFAULT_ADDRESS_PREFIX
        lower_prefix = prefix.lower()
        targets = []

        for key, raw_value in source.items():
            if not key.lower().startswith(lower_prefix):
                continue

            name = key[len(prefix):]
            value = str(raw_value).strip()
            rpc_address = normalize_address(value)
            if rpc_address is None:
                logger.debug(
                    "Skipping invalid address",
                    extra={"context": {"key": key, "value": value}},
                )
                continue

            targets.append(WatchTarget(name=name, address=value, rpc_address=rpc_address))

        if not targets:
            raise ConfigError(
                f"No addresses found in environment with prefix {prefix!r}",
                ErrorCode.CONFIG_NO_ADDRESSES,
                {"prefix": prefix},
            )

        logger.info(
            f"Loaded {len(targets)} watch targets",
            extra={"context": {"prefix": prefix, "count": len(targets)}},
        )
        return cls(tuple(targets))

    def snapshot(self) -> Tuple[WatchTarget, ...]:
        """Immutable copy for one sweep."""
        return tuple(self._targets)

    def __len__(self) -> int:
        return len(self._targets)

    def __iter__(self) -> Iterator[WatchTarget]:
        return iter(self._targets)

    def __getitem__(self, index: int) -> WatchTarget:
        return self._targets[index]

    def __repr__(self) -> str:
        return f"AddressRegistry({len(self._targets)} targets)"
