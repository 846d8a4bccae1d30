"""
ROT13 Cipher Plugin - Example for the Caesar Engine Plugin System

This file demonstrates how to create a custom cipher plugin.
To create your own cipher:

1. Create a new .py file in the plugins/ directory
2. Use the injected base class, decorator and shift helper (no imports needed)
3. Create a class extending CipherStrategy
4. Use the @register_cipher decorator
5. Add an entry to manifest.json with the file name and cipher name

CipherStrategy, register_cipher and shift_text are made available
when this module is loaded by the plugin system.
"""

# These are injected by the plugin loader - no explicit import needed
# from caesar_cipher import CipherStrategy, register_cipher, shift_text


@register_cipher
class Rot13Cipher(CipherStrategy):
    """
    ROT13 substitution cipher.

    A Caesar cipher pinned to a shift of 13, half the alphabet.
    ROT13 is its own inverse: encode and decode are the same operation.
    """

    name = "rot13"
    description = "Caesar cipher fixed at shift 13; self-inverse (example plugin)."
    fixed_shift = 13

    def encode(self, text: str, shift: int = 13) -> str:
        """Encode text using ROT13. The shift argument is ignored."""
        return shift_text(text, self.fixed_shift)

    def decode(self, text: str, shift: int = 13) -> str:
        """Decode ROT13 text (same as encode since ROT13 is symmetric)."""
        return shift_text(text, self.fixed_shift)
