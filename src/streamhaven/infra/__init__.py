"""Infrastructure: settings, database engine, unit of work, logging, exceptions."""
