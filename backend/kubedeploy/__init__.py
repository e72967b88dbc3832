"""KubeDeploy: a small REST facade over the Kubernetes API."""

__version__ = "1.0.0"
