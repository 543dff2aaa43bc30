from vault.attributes import AttributeRegistry


class AttributeProxy:
    """Expose a legacy plaintext field and a vault attribute under one name

    Useful while a plaintext column is being replaced by a vault attribute:
    during the transition both copies are read and written, afterwards
    `encrypted_attribute_only=True` cuts over without touching call sites.

    Usage:
        county_legacy = models.CharField(db_column='county', ...)
        county_plaintext = VaultAttribute(encrypted_column='county_encrypted')
        county = AttributeProxy('county_legacy', 'county_plaintext')
    """

    def __init__(
        self,
        non_encrypted_attribute: str,
        encrypted_attribute: str,
        encrypted_attribute_only: bool = False,
    ):
        self.non_encrypted_attribute = non_encrypted_attribute
        self.encrypted_attribute = encrypted_attribute
        self.encrypted_attribute_only = encrypted_attribute_only
        self.name = None

    def contribute_to_class(self, cls, name, **kwargs):
        self.name = name
        AttributeRegistry.for_model(cls).register_proxy(name, self)
        setattr(cls, name, self)

    def __get__(self, instance, owner=None):
        if instance is None:
            return self

        value = getattr(instance, self.encrypted_attribute)
        if self.encrypted_attribute_only or value is not None:
            return value
        return getattr(instance, self.non_encrypted_attribute)

    def __set__(self, instance, value):
        if not self.encrypted_attribute_only:
            setattr(instance, self.non_encrypted_attribute, value)
        setattr(instance, self.encrypted_attribute, value)
