"""
fixtureflow_shared — configuration, models, errors and the relational
connection shared by the fixtureflow pipeline and CLI.

Usage:
    from fixtureflow_shared.config import settings
    from fixtureflow_shared.resolver import ConfigResolver
    from fixtureflow_shared.models import SourceDescriptor, SourceKind
    from fixtureflow_shared.process_flag import ProcessFlag
    from fixtureflow_shared.db import execute_query, close_connection
"""

__version__ = "0.1.0"
