"""oasforge -- Build OpenAPI 2.0, 3.0 and 3.1 documents from route descriptors.

Route descriptors (path, method, declared parameters, payload types) are
turned into one version-agnostic intermediate representation, which is then
exported to whichever OpenAPI version is asked for::

    from oasforge import generate

    document = generate(
        [{"path": "/items/:id", "method": "get", "params": {"id": "integer"}}],
        version="oas31",
    )

The same routes can be generated from the command line::

    oasforge generate routes.yaml --spec-version oas2 --format yaml

Modules:
    models: Pydantic models for the IR, route descriptors and settings.
    resolvers: Type tokens to primitive schemas.
    introspectors: Entities and pydantic models to named object schemas.
    builders: Route descriptors to IR.
    exporter: IR to OpenAPI documents, one exporter per version.
    generator: Orchestration (:func:`generate`, :class:`Generator`).
    registries: Process-wide resolver, introspector and exporter registries.
    loader: JSON/YAML route descriptor files.
    config: Settings precedence resolution.
    app: Typer CLI.
"""

__version__ = "0.1.0"

from oasforge.generator import Generator, generate, generate_all  # noqa: E402

__all__ = ["Generator", "__version__", "generate", "generate_all"]
