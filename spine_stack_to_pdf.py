#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Export a book spine stack design as a multi-page PDF.
"""

# local repo modules
import book_spine_designer.cli


#============================================
def main() -> None:
	"""
	Main entry point.
	"""
	book_spine_designer.cli.main()


if __name__ == "__main__":
	main()
