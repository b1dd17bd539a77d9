#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Mint QR tags and print them on A4 label sheets.
"""

# Standard Library
import sys

# local repo modules
import qr_label_sheet.cli


if __name__ == "__main__":
	sys.exit(qr_label_sheet.cli.main())
