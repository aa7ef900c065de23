"""Deployment summary — ``chainId -> tag -> unitName -> address``.

Append-only: a recorded address is never replaced. Recording the same
address again is accepted, so a re-run of a deployment script is safe.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from buildvault.core.errors import DeploymentConflictError, DeploymentSummaryError

logger = logging.getLogger(__name__)

Summary = dict[str, dict[str, dict[str, str]]]


class DeploymentSummary:
    """JSON-file-backed deployment summary.

    Parameters
    ----------
    path:
        Location of the summary file. A missing file is an empty summary.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._data: Summary = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Summary:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise DeploymentSummaryError(
                f"Cannot read deployment summary {self._path}: {exc}"
            ) from exc
        if not isinstance(data, dict) or not all(
            isinstance(tags, dict)
            and all(
                isinstance(units, dict)
                and all(isinstance(address, str) for address in units.values())
                for units in tags.values()
            )
            for tags in data.values()
        ):
            raise DeploymentSummaryError(
                f"Deployment summary {self._path} must map chainId -> tag -> unit -> address"
            )
        return data

    def as_dict(self) -> Summary:
        return json.loads(json.dumps(self._data))

    def address_of(self, chain_id: str | int, tag: str, unit_name: str) -> str | None:
        return self._data.get(str(chain_id), {}).get(tag, {}).get(unit_name)

    def record(self, chain_id: str | int, tag: str, unit_name: str, address: str) -> bool:
        """Record a deployment and persist the file.

        Returns ``True`` if a new entry was added, ``False`` if the same
        address was already recorded. Raises ``DeploymentConflictError``
        if a different address is already recorded.
        """
        chain = str(chain_id)
        existing = self.address_of(chain, tag, unit_name)
        if existing is not None:
            if existing.lower() == address.lower():
                return False
            raise DeploymentConflictError(
                f"{unit_name} on chain {chain} is already recorded at {existing}; "
                f"refusing to replace it with {address}",
                tag=tag,
            )
        self._data.setdefault(chain, {}).setdefault(tag, {})[unit_name] = address
        self.save()
        logger.info("Recorded %s@%s on chain %s at %s", unit_name, tag, chain, address)
        return True

    def save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(self._data, handle, indent=2, sort_keys=True)
                handle.write("\n")
            os.replace(name, self._path)
        except BaseException:
            Path(name).unlink(missing_ok=True)
            raise
