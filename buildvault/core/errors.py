"""Error taxonomy for the artifact store.

Every error carries optional project/tag/fingerprint context. Storage
providers raise these directly; the client re-raises them with whatever
context the provider could not know via :meth:`BuildVaultError.with_context`.
"""

from __future__ import annotations


class BuildVaultError(RuntimeError):
    """Base class for all buildvault failures."""

    def __init__(
        self,
        message: str,
        *,
        project: str | None = None,
        tag: str | None = None,
        fingerprint: str | None = None,
    ) -> None:
        self.message = message
        self.project = project
        self.tag = tag
        self.fingerprint = fingerprint
        super().__init__(self._render())

    def _render(self) -> str:
        context = [
            f"{key}={value}"
            for key, value in (
                ("project", self.project),
                ("tag", self.tag),
                ("fingerprint", self.fingerprint),
            )
            if value
        ]
        if not context:
            return self.message
        return f"{self.message} [{', '.join(context)}]"

    def with_context(
        self,
        *,
        project: str | None = None,
        tag: str | None = None,
        fingerprint: str | None = None,
    ) -> BuildVaultError:
        """Fill in missing context fields and refresh the message in place."""
        self.project = self.project or project
        self.tag = self.tag or tag
        self.fingerprint = self.fingerprint or fingerprint
        self.args = (self._render(),)
        return self


class TagExistsError(BuildVaultError):
    """A non-force push targeted a tag that is already registered."""


class TagNotFoundError(BuildVaultError):
    """A pull or diff referenced a tag the project does not have."""


class UnitNotFoundError(BuildVaultError):
    """A qualified name is absent from the resolved bundle."""


class BundleFormatError(BuildVaultError):
    """A bundle directory or payload does not follow the expected layout."""


class FrozenArtifactError(BuildVaultError):
    """A directory is not a verified, tag-pulled bundle."""


class DeploymentConflictError(BuildVaultError):
    """A deployment summary entry would be overwritten with a new address."""


class DeploymentSummaryError(BuildVaultError):
    """A deployment summary file exists but cannot be read as a summary."""


class StorageError(BuildVaultError):
    """Base class for backend failures."""


class StorageTransientError(StorageError):
    """Network or backend hiccup; safe to retry with backoff."""

    attempts: int = 1


class StorageFatalError(StorageError):
    """Auth, permission or missing-resource failure; never retried."""


class BundleNotFoundError(StorageFatalError):
    """No bundle is stored under the requested fingerprint."""


class BundleIntegrityError(StorageFatalError):
    """A stored bundle payload does not re-hash to its fingerprint."""
