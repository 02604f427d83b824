import tagdxf
from tagdxf import DxfVersion, ObjectId, encode_entity, new_entity


def main() -> None:
    proxy = new_entity("ACAD_PROXY_ENTITY")
    proxy.dxf.update(id_code=0x1F0, dictionary_owner_soft="1A", object_owner_soft="1B")
    proxy.binary_graphics_data.extend(["0A0B0C0D", "0E0F"])
    proxy.object_ids.extend([ObjectId(330, "2A"), ObjectId(340, "2B")])

    for version in (DxfVersion.R13, DxfVersion.R2000):
        print(f"--- {version.release}")
        for tag in encode_entity(proxy, version):
            print(f"{tag.code:>3} {tag.value}")

    written = tagdxf.write_dxf([proxy], "/tmp/proxy_r2000.dxf", dxf_version="R2000")
    print(written)

    doc = tagdxf.read("/tmp/proxy_r2000.dxf")
    back = next(doc.query("ACAD_PROXY_ENTITY"))
    print("owners:", back.dxf["dictionary_owner_soft"], back.dxf["object_owner_soft"])
    print("object ids:", back.object_ids)


if __name__ == "__main__":
    main()
