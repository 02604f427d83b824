import tagdxf


result = tagdxf.to_dxf(
    "examples/data/site_plan.dxf",
    "/tmp/site_plan_r12.dxf",
    types="LINE CIRCLE ARC",
    dxf_version="R12",
)
print(result)
