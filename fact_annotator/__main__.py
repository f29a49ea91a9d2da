"""Run the fact-annotator command line tool with `python -m fact_annotator`."""

from fact_annotator.tool.fact_annotator import main

if __name__ == "__main__":
    main()
