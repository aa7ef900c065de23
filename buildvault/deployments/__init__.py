"""Deployment summary bookkeeping."""

from buildvault.deployments.summary import DeploymentSummary

__all__ = ["DeploymentSummary"]
