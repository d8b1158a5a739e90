"""Kubernetes resource builders and workload types (servers, tasks, workers) driven through a pluggable client."""

__version__ = "0.1.0"