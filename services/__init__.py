"""
Service layer for business logic.

This package contains the service that runs the conversion pipeline
(parsing, classification, assembly and rendering) and the staging
store that holds generated files until they are downloaded.
"""
