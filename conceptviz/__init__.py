"""ConceptViz: text-to-visualization backend with concept-aligned reading view."""

__version__ = "0.1.0"
