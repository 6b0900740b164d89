"""Knowledge base, state containers, growth model and engine."""
