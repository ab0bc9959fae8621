"""
Importers turn external playlist and guide formats into parsed records.

Importers are stateless and never touch the content store; persisting their
output is the job of the ingest use cases.
"""
