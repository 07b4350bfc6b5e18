"""
Fake-data GraphQL schema descriptor.

The schema.faker.graphql file next to this module describes the mock
data the example app queries while it runs against the packager. It is
input for an external mock server; nothing here executes it.

Modules:
    - reader: a lightweight reader listing the types, fields and
      fake-data directives the file declares (used by `packagerctl schema`)
"""
