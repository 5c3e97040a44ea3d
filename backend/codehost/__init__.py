"""Code Host Directory Service.

Keeps the registry of code-hosting integrations (GitHub, GitLab, Gerrit,
CodeHub, ...) used by the CI/CD platform and brokers the OAuth
authorization-code flow that obtains their access tokens.
"""

__version__ = "1.0.0"
__author__ = "Code Host Directory Contributors"
