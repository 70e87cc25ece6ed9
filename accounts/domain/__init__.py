"""User domain: entities, query objects, errors, events and ports."""
