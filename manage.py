#!/usr/bin/env python
"""
This is the entry point for the Django project.  It sets the default settings
module to ``eduhub.settings`` and then delegates to Django's management
command line utility.  A bare ``runserver`` listens on ``$PORT`` (4000 by
default) to match the port the frontend expects.
"""
import os
import sys


def main() -> None:
    """Run administrative tasks for the Django project."""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'eduhub.settings')
    try:
        from django.core.management import execute_from_command_line  # type: ignore
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Are you sure it's installed and "
            "available on your PYTHONPATH environment variable? Did you "
            "forget to activate a virtual environment?"
        ) from exc
    argv = list(sys.argv)
    if argv[1:] == ['runserver']:
        argv.append(f"0.0.0.0:{os.getenv('PORT', '4000')}")
    execute_from_command_line(argv)


if __name__ == '__main__':
    main()
