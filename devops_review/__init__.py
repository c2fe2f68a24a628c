"""Pull request change retrieval and review comment delivery for DevOps providers."""

__version__ = "0.1.0"
