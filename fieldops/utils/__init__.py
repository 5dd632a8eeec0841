# SPDX-License-Identifier: Apache-2.0

"""
Utility helpers shared by the domain and service layers.
"""
