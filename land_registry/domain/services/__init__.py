"""Pure domain services: synchronous, side-effect free, re-entrant."""
