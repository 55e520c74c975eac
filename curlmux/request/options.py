"""
Per-transfer option application.
"""

from typing import Any, Dict, Mapping


class Options:
    """
    A reusable map of ``pycurl`` easy options.
    
    Instances are callables so they can be passed wherever a handle
    configurator is expected::
    
        Options({pycurl.URL: 'https://example.org'})(handle)
    """
    
    def __init__(self, options: Mapping[int, Any]):
        self.options: Dict[int, Any] = dict(options)
    
    def __call__(self, handle) -> None:
        handle.set_options(self.options)
    
    def merged(self, other: Mapping[int, Any]) -> 'Options':
        """New Options with ``other`` taking precedence."""
        combined = dict(self.options)
        combined.update(other)
        return Options(combined)
