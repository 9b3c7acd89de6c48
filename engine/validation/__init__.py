"""
Input quality checks applied to monthly data points before a reference model is fitted.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.validation.checks import ValidationWarning, derive_flags, validate

__all__ = ["ValidationWarning", "derive_flags", "validate"]
