import os
import logging

import pandas as pd
import altair as alt

from nobel_tables.data.nobel_write import extension_for, read_table

logger = logging.getLogger(__name__)

FIGURES = ("top_affiliation_countries.html", "yearly_trend.html", "category_stacked.html")


def load_tables(tables_dir: str, sep: str = ","):
    ext = extension_for(sep)
    prizes = read_table(os.path.join(tables_dir, f"prizes{ext}"), sep=sep)
    affiliations = read_table(os.path.join(tables_dir, f"affiliations{ext}"), sep=sep)
    prizes = prizes.dropna(subset=["award_year"]).copy()
    prizes["category"] = prizes["category"].fillna("Unknown")
    return prizes, affiliations


def save_chart(chart: alt.Chart, out_path: str):
    os.makedirs(os.path.dirname(out_path), exist_ok=True)
    chart.save(out_path)


def top_affiliation_countries_chart(affiliations: pd.DataFrame, top_n: int = 15) -> alt.Chart:
    # untranslated tables carry the English label under a suffixed name
    candidates = ("countryNow", "country", "countryNow_en", "country_en")
    col = next((c for c in candidates if c in affiliations.columns), None)
    if col is None:
        affiliations = affiliations.assign(country=None)
        col = "country"
    c = (
        affiliations[col].fillna("Unknown")
        .value_counts()
        .rename_axis("country")
        .reset_index(name="count")
        .head(top_n)
    )
    return alt.Chart(c).mark_bar().encode(
        x=alt.X("count:Q", title="Affiliations"),
        y=alt.Y("country:N", sort="-x", title="Country"),
        tooltip=["country", "count"]
    ).properties(title=f"Prize affiliations by country, top {top_n}", width=700)


def yearly_trend_chart(prizes: pd.DataFrame) -> alt.Chart:
    y = (
        prizes.groupby("award_year")
          .size()
          .reset_index(name="count")
          .sort_values("award_year")
    )
    y["award_year"] = y["award_year"].astype(int)
    return alt.Chart(y).mark_line(point=True).encode(
        x=alt.X("award_year:Q", title="Award year"),
        y=alt.Y("count:Q", title="Laureate prizes"),
        tooltip=["award_year", "count"]
    ).properties(title="Laureate prizes per year", width=700)


def category_stacked_chart(prizes: pd.DataFrame) -> alt.Chart:
    yc = (
        prizes.groupby(["award_year", "category"])
          .size()
          .reset_index(name="count")
          .sort_values(["award_year", "category"])
    )
    yc["award_year"] = yc["award_year"].astype(int)
    return alt.Chart(yc).mark_area().encode(
        x=alt.X("award_year:Q", title="Award year"),
        y=alt.Y("count:Q", stack="normalize", title="Share"),
        color=alt.Color("category:N", title="Category"),
        tooltip=["award_year", "category", "count"]
    ).properties(title="Category share per year (normalized)", width=700)


def write_brief(prizes: pd.DataFrame, affiliations: pd.DataFrame, out_path: str):
    total = prizes["laureate_id"].nunique()
    os.makedirs(os.path.dirname(out_path), exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        f.write("# Nobel laureates: brief\n\n")
        f.write(f"- {len(prizes)} prize rows across {total} laureates.\n")
        if len(prizes):
            f.write(f"- Award years {int(prizes['award_year'].min())} to {int(prizes['award_year'].max())}.\n")
            top_cat = prizes["category"].value_counts()
            f.write(f"- Most frequent category: {top_cat.index[0]} ({int(top_cat.iloc[0])}).\n")
        f.write(f"- {len(affiliations)} affiliation rows.\n")


def run_analysis(tables_dir: str, run_dir: str, sep: str = ",") -> dict:
    out_dir = os.path.join(run_dir, "figures")
    brief_path = os.path.join(run_dir, "brief.md")
    prizes, affiliations = load_tables(tables_dir, sep=sep)

    save_chart(top_affiliation_countries_chart(affiliations), os.path.join(out_dir, FIGURES[0]))
    save_chart(yearly_trend_chart(prizes), os.path.join(out_dir, FIGURES[1]))
    save_chart(category_stacked_chart(prizes), os.path.join(out_dir, FIGURES[2]))
    write_brief(prizes, affiliations, brief_path)
    logger.info("Charts saved to %s and brief created at %s", out_dir, brief_path)
    return {"figures_dir": out_dir, "brief_md": brief_path}


def figures_present(run_dir: str) -> bool:
    out_dir = os.path.join(run_dir, "figures")
    return all(os.path.exists(os.path.join(out_dir, f)) for f in FIGURES) and \
        os.path.exists(os.path.join(run_dir, "brief.md"))


def main():
    import argparse
    parser = argparse.ArgumentParser(description="Nobel table charts and brief")
    parser.add_argument("--tables-dir", required=True, help="Directory holding the written tables")
    parser.add_argument("--run-dir", required=True, help="Run directory for outputs (figures/, brief.md)")
    parser.add_argument("--sep", default=",", help="Field separator used when writing")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    out = run_analysis(args.tables_dir, args.run_dir, sep=args.sep)
    print(f"Charts saved to {out['figures_dir']} and brief.md created at {out['brief_md']}")


if __name__ == "__main__":
    main()
