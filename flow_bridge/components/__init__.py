"""
Flow Bridge Components.

- core/       - Constants, errors, endpoint value object, message classification
- transport/  - Namespaces, client sockets, wire envelope, socket server
- routing/    - Base path helpers, route matching and pruning
- flow/       - Flow runtime seam (node protocol, status, property lookup)
- endpoints/  - Client socket sessions

New code should import from the specific submodules.
"""
