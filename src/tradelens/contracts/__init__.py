"""Wire contracts (JSON Schema) for events carried to the analyzer."""
