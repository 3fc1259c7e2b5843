"""Chart builder.

- spec: immutable chart specifications (layers and global styles)
- layers: binning, boxplot statistics and other layer transforms
- render: compilation to Altair / Vega-Lite and export
"""

# Categorical palette, assigned to sorted group labels in order
PALETTE = [
    "#F8766D",  # Red
    "#00BA38",  # Green
    "#619CFF",  # Blue
    "#C77CFF",  # Purple
    "#00BFC4",  # Cyan
    "#B79F00",  # Olive
    "#F564E3",  # Pink
    "#E76BF3",  # Magenta
]

# Colour of marks that have no colour or fill mapping
DEFAULT_MARK_COLOR = "#595959"
