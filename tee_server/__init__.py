"""Flask service exposing the tee print compositor to the storefront."""
