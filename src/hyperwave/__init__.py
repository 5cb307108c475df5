"""Particle fields driven by 4D rotation/projection and mirror-lattice lighting."""
