"""Face identity verification against an enrolled reference."""
