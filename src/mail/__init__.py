"""Mail core: message sequencing, recipient derivation and the service built on them."""
