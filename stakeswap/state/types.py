"""
Shared type aliases.
"""

AccountId = str  # opaque account identity (address)
TokenId = str  # opaque token identity (address)
Amount = int  # non-negative integer (uint256 domain)
