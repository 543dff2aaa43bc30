"""
Transparent field-level encryption for Django models

Application code reads and writes plaintext attributes while ciphertext is
kept in backing columns; encryption itself is delegated to a transit
encryption service (HashiCorp Vault, or a local stand-in for development).

- attributes: VaultAttribute declarations and the per-model registry
- proxy: AttributeProxy over a legacy plaintext field
- mixins: EncryptedModelMixin, the load / save / reload wiring
- batch: bulk encryption of convergent attributes
- query: equality search on convergent attributes
- transit: clients for the transit service
"""
