"""Allow ``python -m policy_audit``."""

from policy_audit.cli import app

if __name__ == "__main__":
    app()
