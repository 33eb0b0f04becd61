"""Terminal presentation: page tables and the live session panel."""
